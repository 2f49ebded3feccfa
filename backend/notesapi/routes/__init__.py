# Routes package init
"""
Notes API — HTTP Routes
========================

    notes.py   /notes resource routes (unscoped create/list, owner-scoped rest)
    owner.py   action-named owner routes (/add-note, /get-all-notes ...)
    public.py  unauthenticated public notes and profiles
    auth.py    /auth account lifecycle
    health.py  /health
"""
