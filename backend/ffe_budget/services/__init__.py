"""Services package.

Import service modules directly (``from ffe_budget.services.document_service
import DocumentSession``); models depend on ``services.money``, so nothing is
re-exported here.
"""
