# reservations/urls.py
from rest_framework.routers import SimpleRouter

from . import views

router = SimpleRouter()
router.register(r"reservations", views.ReservationViewSet, basename="reservation")
router.register(r"reports", views.ReportViewSet, basename="report")

urlpatterns = router.urls
