"""URL declarations for the SEL application.

All routes answer JSON; child scoped routes take the child's primary key
and are limited to the children of the signed-in parent.
"""

from django.urls import path

from . import views

app_name = 'sel'

urlpatterns = [
    # Parent account
    path('parent/', views.parent_info, name='parent_info'),
    # Daily activity
    path('children/<int:child_id>/check-in/', views.daily_check_in, name='daily_check_in'),
    path('children/<int:child_id>/journal/', views.journal_entry, name='journal_entry'),
    path('children/<int:child_id>/mindfulness/', views.mindfulness_session, name='mindfulness_session'),
    path('children/<int:child_id>/progress/', views.progress_summary, name='progress_summary'),
    # Pre/post assessments
    path('assessments/questions/', views.assessment_questions, name='assessment_questions'),
    path('children/<int:child_id>/assessments/status/', views.assessment_status, name='assessment_status'),
    path('children/<int:child_id>/assessments/comparison/', views.assessment_comparison, name='assessment_comparison'),
    path(
        'children/<int:child_id>/assessments/<str:assessment_type>/',
        views.submit_assessment,
        name='submit_assessment',
    ),
]
