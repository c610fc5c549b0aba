"""
Custom exceptions for Brigade
"""
from rest_framework.exceptions import APIException


class NoOrganizationAssociated(APIException):
    status_code = 400
    default_detail = 'No organization associated with this user.'
    default_code = 'no_organization_associated'


class NoActiveCycle(APIException):
    status_code = 400
    default_detail = 'No active performance cycle.'
    default_code = 'no_active_cycle'


class ReductionLimitReached(APIException):
    status_code = 400
    default_detail = 'Point reduction limit reached for the last 30 days.'
    default_code = 'reduction_limit_reached'


class SickDayAllowanceExhausted(APIException):
    status_code = 400
    default_detail = 'No protected sick days remain in this period.'
    default_code = 'sick_day_allowance_exhausted'


class InvalidPointType(APIException):
    status_code = 400
    default_detail = 'Unknown point type.'
    default_code = 'invalid_point_type'


class StagedEventNotFound(APIException):
    status_code = 404
    default_detail = 'Staged event not found.'
    default_code = 'staged_event_not_found'


class ImportParseError(APIException):
    status_code = 400
    default_detail = 'Could not parse the uploaded shift file.'
    default_code = 'import_parse_error'
