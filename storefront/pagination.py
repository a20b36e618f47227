from rest_framework.pagination import PageNumberPagination


class StandardResultsPagination(PageNumberPagination):
    """Page-number pagination with ?page= and ?size= query parameters."""

    page_size = 10
    page_size_query_param = 'size'
    max_page_size = 100

    def get_envelope_data(self, data):
        """Return the page content for the 'data' key of a response envelope."""
        return {
            'count': self.page.paginator.count,
            'page': self.page.number,
            'total_pages': self.page.paginator.num_pages,
            'next': self.get_next_link(),
            'previous': self.get_previous_link(),
            'results': data,
        }
