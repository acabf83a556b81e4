"""
Service layer.

Each service encapsulates the rules for one domain and is the only
place that talks to the database.  API handlers translate service
exceptions into HTTP responses and hold no business logic.
"""
