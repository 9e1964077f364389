__title__ = "formy"
__description__ = "Chainable multipart/form-data body builder with content type sniffing"
__version__ = "0.1.0"
