class AppStatusCode:
    # Success
    DATA_RETRIEVED_SUCCESSFULLY = "100"
    OPERATION_SUCCESSFUL = "101"

    # Validation
    INVALID_INPUT = "200"
    REQUIRED_VALIDATION_ERROR = "201"
    DUPLICATE_ADD_ERROR = "202"
    INVALID_STATUS_TRANSITION = "203"

    # Authentication / authorization
    AUTHENTICATION_TOKEN_INVALID = "300"
    AUTHENTICATION_TOKEN_EXPIRED = "301"
    AUTHENTICATION_USER_INVALID = "302"
    AUTHENTICATION_USER_INACTIVE = "303"
    UNAUTHORIZED_ACTION = "304"

    # Lookups
    RESOURCE_NOT_FOUND = "400"

    # Failures
    OPERATION_ERROR = "500"
    OPERATION_FAILED = "501"
