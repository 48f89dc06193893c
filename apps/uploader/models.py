"""Models for uploader app.

BlobRecord - schema-less metadata document; id is the primary key and is
assigned by the caller, data holds an arbitrary JSON object.
"""
from tortoise import fields, models

BLOB_COLLECTION = 'blobstore'


class BlobRecord(models.Model):
    id = fields.CharField(pk=True, max_length=255)
    data = fields.JSONField(default=dict)

    class Meta:
        default_connection = "default"
        table = BLOB_COLLECTION

    def as_document(self) -> dict:
        return {'id': self.id, 'data': self.data}
