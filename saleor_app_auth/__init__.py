"""
Saleor App Auth - Authentication plumbing for multi-tenant Saleor apps

Resolves, validates and attaches per-tenant credentials to inbound calls.

Architecture:
- Each module is self-contained with clear interfaces
- Stores and verifiers are injected, never looked up globally
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- apl: Auth Persistence Layer (tenant URL -> credentials)
- auth: Credential resolver, token validator, error taxonomy
- debug: Read-only diagnostics over the APL and auth pipeline
- middleware: HTTP middleware attaching the auth context
- api: Debug endpoint and response models
"""

__version__ = "1.0.0"
