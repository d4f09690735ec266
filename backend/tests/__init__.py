"""
Pytest test suite for the LoadShop backend.

Test categories:
- Unit tests: stores, checkout engine, listing, auth (both storage backends)
- API tests: full FastAPI app over httpx with in-memory SQLite
- Concurrency tests: interleaved checkouts on the in-memory backend
"""
