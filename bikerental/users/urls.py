from django.urls import path

from .views import AdminLoginView, MeView, RegisterView

app_name = "users"

urlpatterns = [
    path("me/", MeView.as_view(), name="me"),
    path("register/", RegisterView.as_view(), name="register"),
    path("admin/login/", AdminLoginView.as_view(), name="admin-login"),
]
