"""
Debug Module - Black Box Interface

Purpose: Operator diagnostics for tenant authentication
Interface: AuthDebugger.debug_auth_state(), check_apl_health(),
           log_auth_failure_details(), explain_unauthorized()
Hidden: Redaction rules, health probe record

Never mutates persisted state except for its own health-check record.
"""

from .auth_debugger import AuthDebugger

__all__ = ["AuthDebugger"]
