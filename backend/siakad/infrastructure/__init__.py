"""Infrastructure Layer — database access and cross-cutting concerns.

Invariants:
    - Infrastructure implements core Protocols; core never imports infrastructure
    - All database failures leave this layer either typed or as the original
      SQLAlchemy exception for the caller to classify
"""
