# Supabase Auth
# Sign up, sign in and token validation are handled by Supabase Auth.
# The only table this module writes is the public `users` profile row
# (see app/modules/users/models.py), upserted on registration.

"""
Supabase Auth calls used:
- auth.sign_up() - Register new users (full_name stored in user_metadata)
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Resolve the current user from a JWT
- auth.sign_out() - Logout users
"""
