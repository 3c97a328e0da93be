# DynamoDB BatchWriteItem accepts at most 25 requests per call
BATCH_WRITE_LIMIT = 25

PROFILE_IMAGE_FORM_FIELD = 'image'
PROFILE_IMAGE_CONTENT_TYPE = 'image/png'

RECORD_TYPE_PROFILE = 'profile'
RECORD_TYPE_CATEGORY = 'category'
RECORD_TYPE_PRODUCT = 'product'

SENSITIVE_FIELDS = ('password',)
