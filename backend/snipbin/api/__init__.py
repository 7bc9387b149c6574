"""
SnipBin Backend — API Layer
============================

What:  HTTP-facing glue shared by all routes: output surfaces, error sinks,
       exception handlers and request dependencies.
"""
