"""
Page Cache service package.

Serves rendered storefront pages from a shared store when the request is
safe to cache, and records freshly rendered pages otherwise:
- Eligibility: debug mode, front-office route, plain GET, maintenance,
  logged-in customer, cart contents
- Keys: MD5 of locale, store, optional device class and URL
- Invalidation: any content event purges the whole store

Structure:
- app.main: FastAPI service, admin routes and lifecycle wiring.
- app.module: PageCache composition root (install/uninstall).
- app.domain: Eligibility, keys, gate, invalidation and middleware.
- app.adapters: Request snapshotting and host event translation.
- app.caching: Store backends (files, redis, memory).
"""
