"""Search ranking and result fusion components.

Contents
- ``fusion``: weighted score fusion of dense and sparse results
- ``scoring``: credibility and relevance heuristics for web results
- ``sources``: citation-numbered source assembly
"""
