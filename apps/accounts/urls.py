from django.urls import path
from . import views

app_name = 'users'

urlpatterns = [
    # User profile
    path('me/', views.get_current_user, name='current-user'),

    # Identity review outcome (staff)
    path('users/<uuid:pk>/verify-identity/', views.verify_identity, name='verify-identity'),

    # Abandoned-purchase blocks (staff)
    path('users/<uuid:pk>/block/', views.set_account_block, name='account-block'),
]
