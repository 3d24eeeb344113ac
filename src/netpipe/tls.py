"""TLS trust policy for the transport client.

Two policies exist:

* **Verified** (default) -- httpx checks the certificate chain against its
  bundled CA store and verifies the hostname.
* **Unsafe** -- :func:`create_unsafe_ssl_context` accepts any certificate for
  any hostname. It is meant for debugging against self-signed or
  intercepting proxies and must be switched on explicitly through
  ``NetworkConfig.unsafe_tls``. A warning is printed every time one is built.
"""

from __future__ import annotations

import ssl
from typing import Union

from netpipe.output import get_output

UNSAFE_TLS_WARNING = (
    "Unsafe TLS is enabled: server certificates and hostnames are NOT verified. "
    "Never use this outside local debugging."
)


def create_unsafe_ssl_context() -> ssl.SSLContext:
    """Return a context that trusts every certificate and hostname."""
    context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
    # check_hostname must be cleared before verify_mode can drop to CERT_NONE.
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    get_output().warning(UNSAFE_TLS_WARNING)
    return context


def ssl_context_for(unsafe: bool) -> Union[ssl.SSLContext, bool]:
    """Return the ``verify`` argument httpx should use for the given policy."""
    if unsafe:
        return create_unsafe_ssl_context()
    return True
