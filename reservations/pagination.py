# reservations/pagination.py
from rest_framework.pagination import PageNumberPagination


class ResultsPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = "results_per_page"
    max_page_size = 100
