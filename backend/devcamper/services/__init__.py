# Services package init
"""
DevCamper Backend: Services Layer
===================================

What:  Business rules between routes (HTTP) and the resource store (persistence).
How:   Each service is a stateless class with a module-level singleton; the
       session and collaborators (geocoder, photo storage) are passed in.

Service Inventory:
    - store.ResourceStore: filter/sort/projection queries, expansion, radius search
    - authorization: ownership and role checks
    - GeocoderService (abstract) / MapQuestGeocoder: address → coordinates
    - photo_service.PhotoStorage: photo validation, storage and cleanup
    - geo: great-circle distance helpers
    - auth_service, bootcamp_service, course_service, review_service, user_service
"""
