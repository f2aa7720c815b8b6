"""Document services - creation, revisions, versions and acknowledgements.

DocumentWorkflowService (documents.service) is the authorized facade over
these operations.
"""
