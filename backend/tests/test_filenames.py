from menu_portal.catalog import document_type_of
from menu_portal.utils.filenames import dedupe_name, safe_brand_name, sanitize_filename, unique_upload_name
from menu_portal.utils.tokens import tokens_match

def test_sanitize_filename():
    assert sanitize_filename('a<b>c:"d"/e\\f|g?h*i') == "a_b_c__d__e_f_g_h_i"
    assert sanitize_filename("  Iced   Latte\t") == "Iced Latte"
    assert sanitize_filename("tab\x00name") == "tab_name"

def test_safe_brand_name():
    assert safe_brand_name("Test Cafe") == "Test_Cafe"
    assert safe_brand_name("   ") == "brand"
    assert safe_brand_name("مطعم السعادة") == "مطعم_السعادة"

def test_unique_upload_name_keeps_stem_and_extension():
    a, b = unique_upload_name("../evil/Cake.PNG"), unique_upload_name("Cake.PNG")
    assert a != b
    assert a.startswith("Cake_") and a.endswith(".png")
    assert "/" not in a
    assert unique_upload_name("").startswith("image_")

def test_dedupe_name_is_case_insensitive():
    used = set()
    assert dedupe_name("Cola", ".jpg", used) == "Cola.jpg"
    assert dedupe_name("COLA", ".jpg", used) == "COLA (2).jpg"
    assert dedupe_name("Cola", ".png", used) == "Cola.png"

def test_document_type_of_prefers_longest_kind():
    assert document_type_of("IBAN_Stamped_Brand_1.pdf") == "IBAN_Stamped"
    assert document_type_of("Trade_License_Brand_2.png") == "Trade_License"
    assert document_type_of("notes.pdf") is None

def test_tokens_match():
    assert tokens_match("abc", "abc")
    assert not tokens_match("abc", "abd")
    assert not tokens_match("abc", None)
    assert not tokens_match(None, None)
