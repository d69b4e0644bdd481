"""
Open Collective -> Discord linked-role service.

Chains two OAuth2 authorization-code flows without server-side sessions and
pushes a small donation summary to Discord as role-connection metadata.
"""
