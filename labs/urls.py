# labs/urls.py
from rest_framework.routers import DefaultRouter

from . import views

router = DefaultRouter()
router.register(r"labs", views.LabViewSet, basename="lab")
router.register(r"equipment", views.EquipmentViewSet, basename="equipment")

urlpatterns = router.urls
