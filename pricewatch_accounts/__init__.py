"""
Pricewatch accounts service.

The accounts service is a Flask application that provides the JSON API behind
the account pages of the price tracker: registration, e-mail verification,
login and logout, password recovery and change, and account deletion.

The service does not store credentials. Password hashing, sessions, tokens
and the e-mails sent to users are all the business of an external credential
store (GoTrue compatible), which this service talks to over HTTP; see
:mod:`pricewatch_accounts.services.credentials`. What this service adds is the
account lifecycle on top: each transition validates its input, checks the
session with the credential store where the transition needs one, calls the
store, and translates whatever went wrong into a small, stable set of error
codes that the front end can branch on (see :mod:`pricewatch_accounts.errors`).

Sessions issued by the credential store are kept in the browser in a signed
cookie (:mod:`pricewatch_accounts.cookies`). Nothing about a session is kept
on this side.

Every operation is behind the ``auth`` feature flag, so that the whole area
can be switched off per environment (:mod:`pricewatch_accounts.features`).

Security invariants
-------------------
- Password recovery and verification resend never reveal whether an address
  is registered.
- Changing a password always re-checks the current password.
- Deleting an account takes the exact confirmation text, and erases only the
  account of the session that asked.
- Every security decision about a session is made by the credential store,
  never from the contents of the cookie alone.

"""
