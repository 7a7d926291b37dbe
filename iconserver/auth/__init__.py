"""
Session tokens for icon-data writes.

Flow:
- The game client presents an Argon credential once (`issue_session_token`).
- The server hands back its own random session token, stored per account.
- Every icon-data write must present that exact token.
"""
