from starlette.requests import HTTPConnection

from src.monitoring.presence import AdminPresenceRegistry
from src.monitoring.websocket import ConnectionManager

def get_presence_registry(connection: HTTPConnection) -> AdminPresenceRegistry:
    return connection.app.state.presence_registry

def get_connection_manager(connection: HTTPConnection) -> ConnectionManager:
    return connection.app.state.connection_manager

def get_session_factory(connection: HTTPConnection):
    return connection.app.state.session_factory
