# HTTP routes live outside this project; the catalog is used through catalog.services.
urlpatterns = []
