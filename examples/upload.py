"""
Every write returns the form, so fields can be chained without checking for
errors after each call. The first error is kept and raised by ``close()``.

The body is plain bytes, any HTTP client can send it, just remember to set
the Content-Type header with the boundary.
"""

from io import BytesIO

from curl_cffi import requests

from formy import FormEncoder, OptionalValue, encode_form

buf = BytesIO()
form = FormEncoder(buf)
form.write_string("title", "holiday pictures")
form.write_int("count", 2)
form.write_optional_json("meta", OptionalValue.of({"album": "2024"}))
# content type is sniffed from the bytes, image/png here
form.write_file_path("image", "./image.png")

with open("./image.jpg", "rb") as file:
    # the same field name can be used for multiple files
    form.write_file("image", "image.jpg", file)

form.close()

r = requests.post(
    "https://httpbin.org/post",
    data=buf.getvalue(),
    headers={"Content-Type": form.content_type},
)
print(r.json())

# or everything at once, from dicts
body, content_type = encode_form(
    {"text": "hello", "tags": ["a", "b"]},
    files={"file": ("test.txt", b"some text")},
)

r = requests.post(
    "https://httpbin.org/post",
    data=body,
    headers={"Content-Type": content_type},
)
print(r.json())
