#!/usr/bin/env python3
"""
Health check сервер для мониторинга бота
Работает в отдельном потоке рядом с polling
"""

import logging
import threading
from datetime import datetime

from flask import Flask, jsonify

logger = logging.getLogger(__name__)

app = Flask(__name__)

# Заполняется ботом: доступность MCP серверов и т.п.
status = {
    "started_at": datetime.now().isoformat(),
    "mcp_servers": {},
    "llm_provider": None,
}


@app.route('/', methods=['GET'])
def index():
    return "Bot OK", 200


@app.route('/health', methods=['GET'])
def health():
    """Health check endpoint"""
    return jsonify({
        'status': 'ok',
        'service': 'telegram-llm-bot',
        'started_at': status["started_at"],
        'llm_provider': status["llm_provider"],
        'mcp_servers': status["mcp_servers"],
    }), 200


def start_health_server(port: int) -> threading.Thread:
    """Запустить Flask в daemon-потоке"""
    thread = threading.Thread(
        target=lambda: app.run(host='0.0.0.0', port=port, debug=False, use_reloader=False),
        name="health-server",
        daemon=True
    )
    thread.start()
    logger.info(f"✓ Health check server started on port {port}")
    return thread
