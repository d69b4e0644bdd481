"""
Stateless request binding for the linking flow.

Design goals:
- No server-side session table: state rides in signed, expiring tokens.
- A per-browser nonce cookie pins each token to the browser that started the flow.
- Fail closed: any doubt about a token ends the flow.
"""
