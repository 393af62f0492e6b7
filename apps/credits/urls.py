from django.urls import path
from . import views

app_name = 'credits'

urlpatterns = [
    path('balance/', views.balance, name='balance'),
    path('movements/', views.movements, name='movements'),
    path('packs/', views.packs, name='packs'),
    path('purchase/', views.purchase, name='purchase'),
    path('services/', views.services, name='services'),
    path('publication-cost/', views.publication_cost, name='publication-cost'),
    path('adjust/', views.adjust, name='adjust'),
]
