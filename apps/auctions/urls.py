from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'auctions'

router = DefaultRouter()
router.register(r'', views.AuctionViewSet, basename='auction')

urlpatterns = [
    # GET    /api/auctions/                          - Active auctions
    # POST   /api/auctions/                          - Create draft
    # GET    /api/auctions/mine/                     - Seller's auctions
    # GET    /api/auctions/{id}/                     - Detail
    # DELETE /api/auctions/{id}/                     - Delete draft/pending
    # POST   /api/auctions/{id}/submit/              - Submit for approval
    # POST   /api/auctions/{id}/approve|pause|resume|finalize/ - Staff
    # GET    /api/auctions/{id}/bids/                - Bid history
    # POST   /api/auctions/{id}/bids/                - Place bid
    # POST   /api/auctions/{id}/highlight/           - Highlight
    # POST   /api/auctions/{id}/confirm_purchase/    - Winner confirms
    path('', include(router.urls)),
]
