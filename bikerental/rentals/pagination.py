from rest_framework.pagination import PageNumberPagination


class BikePagination(PageNumberPagination):
    """Page-number pagination for the catalog and back-office lists."""
    page_size = 12                      # default items per page
    page_size_query_param = 'page_size' # allow ?page_size=
    max_page_size = 50                  # safety cap
