"""
auth — Dropbox OAuth2 (PKCE) module.

Provides:
  • ``AuthorizationSession`` — verifier / challenge / state, single use
  • ``OAuth2Authorizer`` — code exchange and one-shot client handoff
  • ``/`` and ``/oauth2/callback`` API routes
"""
