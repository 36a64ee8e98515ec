"""Store Admin API Flask application package.

To use the Flask app:
    from storeadmin.flask_app import create_app

To use the Supabase services:
    from storeadmin.core.supabase import SupabaseClient, IdentityService, TableService

To use the provisioning workflow:
    from storeadmin.core.provisioning_service import ProvisioningService
"""
# Note: flask_app is not imported by default so the core package can be
# used without Flask (e.g. from scripts).
