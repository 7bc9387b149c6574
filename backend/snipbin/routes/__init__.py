"""
SnipBin Backend — Routes Package
=================================

Route Inventory:
    - health.py:  GET  /health
    - api.py:     POST /api/               (create, JSON)
                  GET  /api/{document}     (fetch, JSON envelope)
    - raw.py:     GET  /raw/{document}     (fetch, text/plain)
    - pages.py:   GET  /  ·  POST /  ·  GET /{document}[.ext]   (HTML)

Routes stay thin: validate the identifier, call the document store, hand
the result to the response renderer. Failures are raised, never formatted
here; the error handlers pick the output surface.
"""
