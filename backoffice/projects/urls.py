from django.urls import path
from .views import (
    project_list_create, project_detail, project_gantt, project_compliance, project_pcb_files,
    milestone_list, project_tasks, project_task_dependency_create,
    time_entry_list_create, time_entry_summary, time_entry_action
)

urlpatterns = [
    path('projects/', project_list_create, name='project-list'),
    path('projects/<int:pk>/', project_detail, name='project-detail'),
    path('projects/<int:pk>/gantt/', project_gantt, name='project-gantt'),
    path('projects/<int:pk>/compliance/', project_compliance, name='project-compliance'),
    path('projects/<int:pk>/pcb-files/', project_pcb_files, name='project-pcb-files'),
    path('projects/<int:pk>/tasks/', project_tasks, name='project-tasks'),
    path('projects/<int:pk>/task-dependencies/', project_task_dependency_create, name='project-task-dependencies'),
    path('milestones/', milestone_list, name='milestone-list'),
    path('time-entries/', time_entry_list_create, name='time-entry-list'),
    path('time-entries/summary/', time_entry_summary, name='time-entry-summary'),
    path('time-entries/<int:pk>/<str:action>/', time_entry_action, name='time-entry-action'),
]
