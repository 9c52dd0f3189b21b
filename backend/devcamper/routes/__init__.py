# Routes package init
"""
DevCamper Backend: API Routes Package
=======================================

What:  HTTP route handlers that accept requests and return responses.
How:   One module per resource; routes stay thin and delegate to services.

Route Inventory (mounted under /api/v1 unless noted):
    - auth.py:       /auth/register, /auth/login, /auth/logout, /auth/me,
                     /auth/updatedetails, /auth/updatepassword
    - bootcamps.py:  /bootcamps, /bootcamps/{id}, /bootcamps/radius/{zipcode}/{distance},
                     /bootcamps/{id}/photo
    - courses.py:    /courses, /courses/{id}, /bootcamps/{bootcampId}/courses
    - reviews.py:    /reviews, /reviews/{id}, /bootcamps/{bootcampId}/reviews
    - users.py:      /users, /users/{id}  (admin only)
    - uploads.py:    GET /uploads/{filename}  (root)
    - health.py:     GET /health              (root)
    - deps.py:       shared dependencies (current user, roles, geocoder, photo storage)
"""
