# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

from cardocr.pipeline import FieldType, classify_field, classify_fields


def test_identity_number_and_birth_date_patterns():
    assert classify_field("1234-5678-9012") is FieldType.IDENTITY_NUMBER
    assert classify_field(" March-05-1990 ") is FieldType.DATE_OF_BIRTH
    assert classify_field("May-5-1990") is FieldType.UNKNOWN
    assert classify_field("1234-5678-901") is FieldType.UNKNOWN


def test_classify_fields_maps_in_order():
    assert classify_fields(["JOHN DOE", "0000-1111-2222"]) == [
        FieldType.UNKNOWN,
        FieldType.IDENTITY_NUMBER,
    ]
