"""Scripted chatbot interactions: participant sessions, record synchronisation and admin exports."""
