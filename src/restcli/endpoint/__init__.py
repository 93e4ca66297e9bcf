"""HTTP Command Endpoint module for restcli.

Provides the FastAPI application that parses incoming requests,
forwards them to the command engine, and sends back the body and
content type the engine chose.
"""
