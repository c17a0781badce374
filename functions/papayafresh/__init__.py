"""
PapayaFresh admin API.

A FastAPI service that reads the PapayaFresh scanner app's Firestore data
(`users` with `shelf` and `history` sub-collections) and serves dashboard
statistics plus read/delete endpoints for the admin console.
"""
