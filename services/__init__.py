"""
Service layer: sessions, token issuance and bootstrap data.

- errors: status-carrying exceptions rendered by api.errors
- token_issuer: signs JWTs and records them in the token ledger
- session: login / register / refresh / logout orchestration
- seed: first administrator on an empty database
"""
