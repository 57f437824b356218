"""
Token authentication for the billing API.

A thin subclass of Django REST framework's ``TokenAuthentication`` that
gives the settings module a stable import path and pins the
``Authorization: Token <key>`` keyword.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    keyword = 'Token'
