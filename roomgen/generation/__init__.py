"""Room redesign generation layer.

Turns a redesign request into a finished image URL:
  - Rate Limiter (fixed window per client IP, Redis or in-memory)
  - Prompt Builder (theme + room → prompt text)
  - Job Client (Replicate prediction submit / status check)
  - Job Poller (bounded fixed-interval polling to a terminal status)
  - Generation Service (composes the above per request)
"""
