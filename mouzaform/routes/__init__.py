# Routes package init
"""
MouzaForm Backend — API Routes Package
========================================

Route Inventory:
    - submit.py:     POST   /submit                              (store a form)
    - form_data.py:  GET    /data                                (list forms)
                     DELETE /data/{id}                           (form + entries)
                     DELETE /delete-mouza-info/{form_data_id}    (entries only)
    - health.py:     GET    /health                              (health check)

Routes stay thin: extract request data, call a service, return its result.
"""
