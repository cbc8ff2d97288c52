import base64
import binascii
import json
import typing as tp

import msgpack

from acorncache._core._headers import Headers
from acorncache._core.models import StoredResponse
from acorncache._exceptions import SerializationError

__all__ = ("BaseSerializer", "JSONSerializer", "MsgPackSerializer")


def _headers_from_pairs(pairs: tp.Iterable[tp.Sequence[str]]) -> Headers:
    headers = Headers({})
    for key, value in pairs:
        if not isinstance(key, str) or not isinstance(value, str):
            raise TypeError(f"Header names and values must be strings, got {key!r}: {value!r}")
        headers[key] = value
    return headers


class BaseSerializer:
    def dumps(self, response: StoredResponse) -> tp.Union[str, bytes]:
        raise NotImplementedError()

    def loads(self, data: tp.Union[str, bytes]) -> StoredResponse:
        raise NotImplementedError()

    @property
    def is_binary(self) -> bool:
        raise NotImplementedError()


class JSONSerializer(BaseSerializer):
    """A simple json-based serializer."""

    def dumps(self, response: StoredResponse) -> tp.Union[str, bytes]:
        """
        Dumps the stored response.

        :param response: A stored response
        :type response: StoredResponse
        :return: Serialized response
        :rtype: tp.Union[str, bytes]
        """
        response_dict = {
            "status": response.status,
            "headers": [[key, value] for key, value in response.headers.multi_items()],
            "body": base64.b64encode(response.body).decode("ascii"),
        }
        return json.dumps(response_dict, indent=4)

    def loads(self, data: tp.Union[str, bytes]) -> StoredResponse:
        """
        Loads the stored response from serialized data.

        :param data: Serialized data
        :type data: tp.Union[str, bytes]
        :return: The stored response
        :rtype: StoredResponse
        """
        try:
            response_dict = json.loads(data)
            return StoredResponse(
                status=int(response_dict["status"]),
                headers=_headers_from_pairs(response_dict["headers"]),
                body=base64.b64decode(response_dict["body"], validate=True),
            )
        except (ValueError, KeyError, TypeError, binascii.Error) as exc:
            raise SerializationError(f"Cannot decode the stored response: {exc}") from exc

    @property
    def is_binary(self) -> bool:
        return False


class MsgPackSerializer(BaseSerializer):
    """A compact msgpack-based serializer. The body is stored as raw bytes."""

    def dumps(self, response: StoredResponse) -> tp.Union[str, bytes]:
        response_dict = {
            "status": response.status,
            "headers": response.headers.multi_items(),
            "body": response.body,
        }
        return tp.cast(bytes, msgpack.packb(response_dict, use_bin_type=True))

    def loads(self, data: tp.Union[str, bytes]) -> StoredResponse:
        if isinstance(data, str):
            raise SerializationError("The msgpack serializer expects binary data.")

        try:
            response_dict = msgpack.unpackb(data, raw=False)
            return StoredResponse(
                status=int(response_dict["status"]),
                headers=_headers_from_pairs(response_dict["headers"]),
                body=bytes(response_dict["body"]),
            )
        except (ValueError, KeyError, TypeError, msgpack.UnpackException) as exc:
            raise SerializationError(f"Cannot decode the stored response: {exc}") from exc

    @property
    def is_binary(self) -> bool:
        return True
