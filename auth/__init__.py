"""
auth — User authentication module.

Provides:
  • Password hashing (bcrypt, off-loop async wrappers)
  • Signed session token creation & verification
  • Register / Login API routes
  • ``get_current_principal`` request guard (FastAPI dependency)
"""
