"""
Domain abstractions and value objects for the gateway.
"""
