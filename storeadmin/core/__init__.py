"""Core Business Logic Module

Business logic independent of Flask: every function takes its collaborators
(identity provider, table store, caller context) as arguments.

Module Structure:
    - supabase/               : Supabase Auth + PostgREST client
    - rbac.py                 : Authorization guard and CallerContext
    - provisioning_service.py : User provisioning workflow (identity + profile)
    - ingredient_service.py   : Store ingredient listing
    - catalog_service.py      : Headquarters menu catalog
    - store_menu_service.py   : Per-store menu
    - session_service.py      : Login
    - errors.py               : Error taxonomy (ApiError and subclasses)
    - validators.py           : Request field validation
    - audit.py                : Signed JSONL audit trail

Usage Pattern:
    Import explicitly when needed:
        from storeadmin.core.rbac import authorize, Scope
        from storeadmin.core.provisioning_service import ProvisioningService, NewUser
"""
