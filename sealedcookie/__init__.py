# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# This software is provided as-is. You are free to use, share, modify
# and share modifications under the terms of that license, even with
# proprietary code. Attribution is not required to share but is
# appreciated.
"""SealedCookie: seal values in HTTP cookies as signed or encrypted compact tokens.

The goal of this module is to provide a simple way to store structured values in
cookies, reading them back in later requests, making sure they weren't tampered
with (signed tokens) or even read (encrypted tokens). Tokens are standard JWS/JWE
compact tokens, with keys derived from the configured secrets using PBES2.

Secrets can be rotated with no downtime: the first secret seals new values, and
every secret is tried, in order, to open them.

See examples and more info in the README.
"""

from . import errors
from .attributes import CookieOptions
from .codec import CodecMode
from .codec import DecodedToken
from .codec import TokenCodec
from .codec import decode
from .codec import encode
from .cookies import Cookie
from .cookies import is_cookie
from .diagnostics import CookieConfigurationWarning
from .ring import SecretRing

__version__ = '0.1.0'

__all__ = (
    'errors',
    'CodecMode',
    'Cookie',
    'CookieConfigurationWarning',
    'CookieOptions',
    'DecodedToken',
    'SecretRing',
    'TokenCodec',
    'decode',
    'encode',
    'is_cookie',
)
