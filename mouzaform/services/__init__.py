# Services package init
"""
MouzaForm Backend — Services Layer
====================================

What:  Business logic between routes (HTTP) and the database.

Service Inventory:
    - StoreGateway: every parameterized statement against form_data / mouza_info
    - SubmissionService: submit workflow (insert parent + children, re-read)
    - FormDataService: list-all, cascade delete, delete-children-only

Services are stateless singletons; each call receives the request's session.
"""
