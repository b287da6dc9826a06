"""
SpaceFlow Django adapter URL routing.
"""

from django.urls import path

from adapters.django_api import views


urlpatterns = [
    path("parse-intent", views.parse_intent_view),
    path("commands", views.commands_view),
    path("commands/undo", views.undo_view),
    path("commands/redo", views.redo_view),
    path("pallets", views.pallets_view),
    path("pallets/<str:pallet_id>/events", views.pallet_events_view),
    path("filter/reset", views.filter_reset_view),
    path("kpis", views.kpis_view),
    path("simulation/start", views.simulation_start_view),
    path("simulation/stop", views.simulation_stop_view),
    path("simulation/speed", views.simulation_speed_view),
]
