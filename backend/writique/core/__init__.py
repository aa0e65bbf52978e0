"""
Core application modules.
Contains essential infrastructure components:
- bootstrap: Startup promotion of configured admin accounts
- db: Database configuration and connection management
- errors: Tagged error hierarchy rendered by the API
- identity: Identity provider contract and the Clerk adapter
- policy: Role and ownership authorization rules
- provisioning: Local user resolution and webhook lifecycle handling
"""
