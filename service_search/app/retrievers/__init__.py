"""Document retrievers for dense and sparse workflows.

Retrievers encapsulate how candidates are fetched from the document store
before fusion. Each one degrades to an empty list when its collaborators
fail.
"""
