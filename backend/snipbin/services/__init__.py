"""
SnipBin Backend — Services Layer
=================================

What:  Business logic between the routes (HTTP) and the database.

Service Inventory:
    - identifiers:        id validation, extension split, id generation
    - body_decoder:       content-negotiated create request decoding
    - validation:         per-variant field rules
    - document_store:     document lookup and insert
    - renderer:           JSON / raw / code / reader responses
    - highlight:          Pygments syntax highlighting
    - markdown_renderer:  Markdown → HTML for the reader view
    - templates:          Jinja2 page templates
"""
