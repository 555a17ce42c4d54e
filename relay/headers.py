from collections.abc import Iterable

RawHeaders = list[tuple[bytes, bytes]]


def build_upstream_headers(raw_headers: Iterable[tuple[bytes, bytes]], hostname: str) -> RawHeaders:
    """
    Copy inbound headers for the upstream request, replacing Host.

    Order and repeated values are kept. The first Host header is rewritten in
    place (appended when the client sent none) and any further Host headers
    are dropped. Nothing else is filtered, hop-by-hop headers included.
    """
    host = hostname.encode('idna')
    headers: RawHeaders = []
    host_seen = False
    for key, value in raw_headers:
        if key.lower() == b'host':
            if not host_seen:
                headers.append((key, host))
                host_seen = True
            continue
        headers.append((key, value))

    if not host_seen:
        headers.append((b'host', host))
    return headers
