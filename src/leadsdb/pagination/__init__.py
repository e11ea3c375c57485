"""
Paging over lead listings, pull-based or pushed onto outlets.
"""

from leadsdb.pagination.pager import Paginator

__all__ = ["Paginator"]
