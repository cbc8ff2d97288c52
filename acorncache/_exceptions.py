__all__ = ("CacheError", "MalformedEntry", "SerializationError")


class CacheError(Exception): ...


class MalformedEntry(CacheError): ...


class SerializationError(CacheError): ...
