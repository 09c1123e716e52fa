"""auth/ -- Authentication security core for AuthGuard.

Password policy, login rate limiting, security audit log, tokens and input
sanitizers. Everything here is synchronous and framework-free.

Layer rule: auth/ imports only stdlib + third-party libraries (and core/ for
Settings-derived constructors). It does NOT import from api/.
api/ imports from auth/, not the other way around.
"""
