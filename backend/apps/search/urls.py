from django.urls import path
from .views import SearchView, AutocompleteView

app_name = 'search'

urlpatterns = [
    # GET /api/v1/search
    path('search', SearchView.as_view(), name='search'),

    # GET /api/v1/search/autocomplete
    path('search/autocomplete', AutocompleteView.as_view(), name='autocomplete'),
]
