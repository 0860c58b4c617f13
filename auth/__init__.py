"""
auth — User authentication module.

Provides:
  • Argon2id password hashing (``auth.password``)
  • Email OTP issuance / verification (``auth.otp``)
  • JWT session token creation & verification (``auth.jwt``)
  • OTP / create-user / login API routes
  • ``get_current_claims`` FastAPI dependency
"""
