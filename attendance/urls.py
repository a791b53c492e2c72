from django.urls import path
from . import views

app_name = "attendance"

urlpatterns = [
    path("check-in/", views.check_in, name="check_in"),
    path("sessions/<int:session_id>/tokens/", views.issue_token, name="issue_token"),
    path("tokens/<str:token>/close/", views.close_token, name="close_token"),
    path("sessions/<int:session_id>/mark/", views.mark_attendance, name="mark"),
    path("sessions/<int:session_id>/finalize/", views.finalize, name="finalize"),
    path("sessions/<int:session_id>/report/", views.report, name="report"),
    path("sessions/<int:session_id>/host/", views.set_host, name="set_host"),
    path("records/<int:record_id>/", views.delete_record, name="delete_record"),
    path("enrollments/<int:enrollment_id>/score/", views.enrollment_score, name="enrollment_score"),
    path("scoring-config/", views.scoring_config, name="scoring_config"),
]
