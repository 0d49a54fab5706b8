"""Resolution of entity options: turn a given id into its name or a given name into its id."""

from __future__ import annotations

import base64
import binascii
import hashlib
import logging
from collections.abc import Callable, MutableMapping
from enum import Enum
from itertools import chain, islice, repeat
from typing import Any, Optional

log = logging.getLogger(__name__)

Options = MutableMapping[str, Any]
ServiceSearch = Callable[[str], str]
"""Look up a service by name and return its id."""

SERVICE_ID = "service-id"
SERVICE_NAME = "service-name"
DEST_SERVICE_ID = "dest-service-id"
DEST_SERVICE_NAME = "dest-service-name"

ENDPOINT_ID = "endpoint-id"
ENDPOINT_NAME = "endpoint-name"
DEST_ENDPOINT_ID = "dest-endpoint-id"
DEST_ENDPOINT_NAME = "dest-endpoint-name"

INSTANCE_ID = "instance-id"
INSTANCE_NAME = "instance-name"
DEST_INSTANCE_ID = "dest-instance-id"
DEST_INSTANCE_NAME = "dest-instance-name"
INSTANCE_ID_LIST = "instance-id-list"
INSTANCE_NAME_LIST = "instance-name-list"

PAGE_ID = "page-id"
PAGE_NAME = "page-name"

VERSION_ID = "version-id"
VERSION_NAME = "version-name"

PROCESS_ID = "process-id"
PROCESS_NAME = "process-name"
DEST_PROCESS_NAME = "dest-process-name"


class EntityError(ValueError):
    """An entity id or name given on the command line is missing or malformed."""


class _NodeType(Enum):
    NORMAL = "normal"
    BROWSER = "browser"


def _text(options: Options, key: str) -> str:
    value = options.get(key)
    return "" if value is None else str(value)


def _b64decode(text: str) -> str:
    try:
        raw = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise EntityError(f"illegal base64 data in {text!r}: {exc}") from exc
    return raw.decode("utf-8", errors="replace")


def _b64encode(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def _missing(id_flag: str, name_flag: str) -> EntityError:
    return EntityError(f'either flags "--{id_flag}" or "--{name_flag}" must be given')


def _no_parent(name_flag: str) -> EntityError:
    return EntityError(
        f'"--{name_flag}" is specified but its related service name or id is not given'
    )


def parse_service_id(service_id: Optional[str]) -> tuple[str, bool]:
    """Split a service id into the service name and whether the service is normal.

    An empty id gives ``("", False)``.
    """
    if not service_id:
        return "", False
    parts = service_id.split(".")
    if len(parts) != 2:
        raise EntityError(
            f"invalid service id, cannot be splitted into 2 parts. {service_id}"
        )
    return _b64decode(parts[0]), parts[1] == "1"


def _parse_service(
    options: Options,
    required: bool,
    id_flag: str,
    name_flag: str,
    node_type: _NodeType,
    search: Optional[ServiceSearch],
) -> None:
    service_id = _text(options, id_flag)
    name = _text(options, name_flag)

    if not service_id and not name:
        if required:
            raise _missing(id_flag, name_flag)
        return

    if service_id:
        parts = service_id.split(".")
        if len(parts) != 2:
            raise EntityError(
                f"invalid service id, cannot be splitted into 2 parts. {service_id}"
            )
        name = _b64decode(parts[0])
    else:
        if search is None:
            raise EntityError(
                f'cannot resolve "--{name_flag}" without a {node_type.value} service lookup'
            )
        service_id = search(name)

    options[id_flag] = service_id
    options[name_flag] = name
    log.debug("%s=%s, %s=%s", id_flag, service_id, name_flag, name)


def parse_service(
    options: Options, required: bool, search_service: Optional[ServiceSearch] = None
) -> None:
    """Fill in whichever of ``service-id`` and ``service-name`` is missing."""
    _parse_service(
        options, required, SERVICE_ID, SERVICE_NAME, _NodeType.NORMAL, search_service
    )


def parse_browser_service(
    options: Options,
    required: bool,
    search_browser_service: Optional[ServiceSearch] = None,
) -> None:
    """Like :func:`parse_service`, looking names up among browser services."""
    _parse_service(
        options,
        required,
        SERVICE_ID,
        SERVICE_NAME,
        _NodeType.BROWSER,
        search_browser_service,
    )


def parse_service_relation(
    options: Options, required: bool, search_service: Optional[ServiceSearch] = None
) -> None:
    """Resolve both the source and the destination service."""
    parse_service(options, required, search_service)
    _parse_service(
        options,
        required,
        DEST_SERVICE_ID,
        DEST_SERVICE_NAME,
        _NodeType.NORMAL,
        search_service,
    )


def _parse_endpoint(
    options: Options, required: bool, id_flag: str, name_flag: str, service_flag: str
) -> None:
    endpoint_id = _text(options, id_flag)
    name = _text(options, name_flag)
    service_id = _text(options, service_flag)

    if not endpoint_id and not name:
        if required:
            raise _missing(id_flag, name_flag)
        return

    if endpoint_id:
        parts = endpoint_id.split("_")
        if len(parts) != 2:
            raise EntityError(
                f"invalid endpoint id, cannot be splitted into 2 parts. {endpoint_id}"
            )
        name = _b64decode(parts[1])
    else:
        if not service_id:
            raise _no_parent(name_flag)
        endpoint_id = f"{service_id}_{_b64encode(name)}"

    options[id_flag] = endpoint_id
    options[name_flag] = name


def parse_endpoint(
    options: Options, required: bool, search_service: Optional[ServiceSearch] = None
) -> None:
    """Resolve the service, then fill in ``endpoint-id`` or ``endpoint-name``."""
    parse_service(options, required, search_service)
    _parse_endpoint(options, required, ENDPOINT_ID, ENDPOINT_NAME, SERVICE_ID)


def parse_endpoint_relation(
    options: Options, required: bool, search_service: Optional[ServiceSearch] = None
) -> None:
    """Resolve the source and destination services and endpoints."""
    parse_service_relation(options, required, search_service)
    parse_endpoint(options, required, search_service)
    _parse_endpoint(
        options, required, DEST_ENDPOINT_ID, DEST_ENDPOINT_NAME, DEST_SERVICE_ID
    )


def _encode_instance(
    service_id: str, name_flag: str, instance_id: str, name: str
) -> tuple[str, str]:
    if instance_id:
        parts = instance_id.split("_")
        if len(parts) != 2:
            raise EntityError(
                f"invalid instance id, cannot be splitted into 2 parts. {instance_id}"
            )
        name = _b64decode(parts[1])
    elif name:
        if not service_id:
            raise _no_parent(name_flag)
        instance_id = f"{service_id}_{_b64encode(name)}"
    return instance_id, name


def _parse_instance(
    options: Options, required: bool, id_flag: str, name_flag: str, service_flag: str
) -> None:
    instance_id = _text(options, id_flag)
    name = _text(options, name_flag)
    service_id = _text(options, service_flag)

    if not instance_id and not name:
        if required:
            raise _missing(id_flag, name_flag)
        return

    instance_id, name = _encode_instance(service_id, name_flag, instance_id, name)
    options[id_flag] = instance_id
    options[name_flag] = name


def parse_instance(
    options: Options, required: bool, search_service: Optional[ServiceSearch] = None
) -> None:
    """Resolve the service, then fill in ``instance-id`` or ``instance-name``."""
    parse_service(options, required, search_service)
    _parse_instance(options, required, INSTANCE_ID, INSTANCE_NAME, SERVICE_ID)


def parse_instance_list(
    options: Options, required: bool, search_service: Optional[ServiceSearch] = None
) -> None:
    """Resolve comma separated ``instance-id-list`` or ``instance-name-list`` into both."""
    parse_service(options, required, search_service)

    ids_arg = _text(options, INSTANCE_ID_LIST)
    names_arg = _text(options, INSTANCE_NAME_LIST)
    service_id = _text(options, SERVICE_ID)

    if not ids_arg and not names_arg:
        if required:
            raise _missing(INSTANCE_ID_LIST, INSTANCE_NAME_LIST)
        return

    ids = ids_arg.split(",")
    names = names_arg.split(",")
    size = len(ids) if ids_arg else len(names)

    def padded(values: list[str]):
        return chain(values, repeat(""))

    resolved = [
        _encode_instance(service_id, INSTANCE_NAME_LIST, instance_id, name)
        for instance_id, name in islice(zip(padded(ids), padded(names)), size)
    ]
    options[INSTANCE_ID_LIST] = ",".join(instance_id for instance_id, _ in resolved)
    options[INSTANCE_NAME_LIST] = ",".join(name for _, name in resolved)


def parse_instance_relation(
    options: Options, required: bool, search_service: Optional[ServiceSearch] = None
) -> None:
    """Resolve the source instance and the destination instance."""
    parse_service(options, required, search_service)
    parse_instance(options, required, search_service)
    _parse_instance(
        options, required, DEST_INSTANCE_ID, DEST_INSTANCE_NAME, DEST_SERVICE_ID
    )


def parse_page(
    options: Options,
    required: bool,
    search_browser_service: Optional[ServiceSearch] = None,
) -> None:
    """Resolve the browser service, then fill in ``page-id`` or ``page-name``."""
    parse_browser_service(options, required, search_browser_service)
    _parse_endpoint(options, required, PAGE_ID, PAGE_NAME, SERVICE_ID)


def parse_version(
    options: Options,
    required: bool,
    search_browser_service: Optional[ServiceSearch] = None,
) -> None:
    """Resolve the browser service, then fill in ``version-id`` or ``version-name``."""
    parse_browser_service(options, required, search_browser_service)
    _parse_instance(options, required, VERSION_ID, VERSION_NAME, SERVICE_ID)


def process_id(instance_id: str, name: str) -> str:
    """Compute the id of the process ``name`` running in ``instance_id``.

    The id is the hex form of ``<instance_id>_<name>`` followed by the digest of an
    empty SHA-256 hash, as the backend expects.
    """
    data = f"{instance_id}_{name}".encode("utf-8")
    return (data + hashlib.sha256().digest()).hex()


def _parse_process(
    options: Options,
    required: bool,
    id_flag: str,
    name_flag: str,
    instance_flag: str,
) -> None:
    pid = _text(options, id_flag)
    name = _text(options, name_flag)
    instance_id = _text(options, instance_flag)

    if not pid and not name:
        if required:
            raise _missing(id_flag, name_flag)
        return

    if name:
        if not instance_id:
            raise _no_parent(name_flag)
        pid = process_id(instance_id, name)

    options[id_flag] = pid


def parse_process(
    options: Options, required: bool, search_service: Optional[ServiceSearch] = None
) -> None:
    """Resolve service and instance, then compute ``process-id`` from a process name."""
    parse_service(options, required, search_service)
    parse_instance(options, required, search_service)
    _parse_process(options, required, PROCESS_ID, PROCESS_NAME, INSTANCE_ID)


def parse_process_relation(
    options: Options, required: bool, search_service: Optional[ServiceSearch] = None
) -> None:
    """Resolve the source process and require a destination process name."""
    parse_service(options, required, search_service)
    parse_instance(options, required, search_service)
    parse_process(options, required, search_service)
    if required and not _text(options, DEST_PROCESS_NAME):
        raise EntityError(f'flag "--{DEST_PROCESS_NAME}" must given')