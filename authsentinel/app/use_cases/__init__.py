"""
Use Cases

Organized into domain folders:
- auth/: Sign-in, registration, verification, token reconciliation
- sessions/: Self-service session management
- security/: Login history
- admin/: Maintenance and account administration
"""
