"""Protobuf dependency manager and protoc code generation driver."""

__version__ = "0.1.0"