from .http import HttpConnector, http_connector_factory

__all__ = ["HttpConnector", "http_connector_factory"]
