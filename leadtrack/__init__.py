"""
leadtrack
=========

Company lifecycle and reminder engine for a sales‑lead tracker.

Import structure
----------------
`import leadtrack` imports nothing else.  The rule modules
(:pymod:`~leadtrack.lifecycle`, :pymod:`~leadtrack.permissions`,
:pymod:`~leadtrack.reminders`) never touch the network or the clock; httpx is
only pulled in by the backend client and the login client.

Sub‑modules
~~~~~~~~~~~
- :pymod:`leadtrack.models`       – ``Company`` / ``User`` / ``Comment`` dataclasses + enums
- :pymod:`leadtrack.lifecycle`    – transition table and ``validate_transition``
- :pymod:`leadtrack.permissions`  – ``can_edit`` / ``can_delete`` / ``can_comment``
- :pymod:`leadtrack.reminders`    – ``derive_reminders``
- :pymod:`leadtrack.portfolio`    – ``CompanyBook`` in‑memory collection
- :pymod:`leadtrack.schemas`      – pydantic models for the backend JSON
- :pymod:`leadtrack.display`      – names, initials and relative times
- :pymod:`leadtrack.client`       – async REST client (httpx)
- :pymod:`leadtrack.auth`         – ``Session`` + ``AuthClient``
- :pymod:`leadtrack.controller`   – ``LifecycleController``

Quick start
-----------
>>> from datetime import date, datetime
>>> from leadtrack.models import Company
>>> from leadtrack.reminders import derive_reminders
>>> acme = Company(id=1, name="Acme", assigned_to=7, assigned_by=7, contact_date=date(2025, 3, 3))
>>> [r.message for r in derive_reminders([acme], owner=7, now=datetime(2025, 3, 1, 9))]
['Meeting with Acme in 2 days', 'Acme is still pending (contact date Mar 03, 2025)']

"""

__all__ = [
    "models",
    "lifecycle",
    "permissions",
    "reminders",
    "portfolio",
    "schemas",
    "display",
    "errors",
    "settings",
    "client",
    "auth",
    "controller",
]

__version__ = "0.1.0"
