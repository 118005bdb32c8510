"""
MCP клиенты: серверы-процессы (stdio) и HTTP серверы
"""

import logging

from .stdio_client import MCPStdioClient
from .http_client import MCPHttpClient

logger = logging.getLogger(__name__)


async def init_mcp_clients(stdio_servers, http_servers, timeout: float = 60.0):
    """Запустить все настроенные MCP клиенты; недоступные тоже возвращаются"""
    clients = []

    for server in stdio_servers:
        client = MCPStdioClient(
            name=server["name"],
            command=server["command"],
            args=server.get("args", []),
            env=server.get("env", {}),
            timeout=timeout
        )
        await client.start()
        clients.append(client)

    for server in http_servers:
        client = MCPHttpClient(name=server["name"], url=server["url"], timeout=timeout)
        await client.start()
        clients.append(client)

    available = [c.name for c in clients if c.is_available()]
    logger.info(f"MCP clients initialized: {len(available)}/{len(clients)} available {available}")
    return clients


async def shutdown_mcp_clients(clients):
    for client in clients:
        await client.stop()
    logger.info("All MCP clients stopped")


__all__ = [
    'MCPStdioClient',
    'MCPHttpClient',
    'init_mcp_clients',
    'shutdown_mcp_clients'
]
