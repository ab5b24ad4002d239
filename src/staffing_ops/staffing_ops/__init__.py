"""Staffing Ops package.

Feature modules (members, attendance, reports) each carry a model, a repository
interface with a MySQL implementation, a service layer and a thin Flask controller.
"""
