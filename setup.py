import setuptools

with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name="twmap",
    version="0.0.1",
    description="Teeworlds map files for humans",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(exclude=['tests', 'tests.*']),
    install_requires=[
        'bitstring',
        'pillow',
    ],
    extras_require={
        'test': ['pytest'],
    },
    scripts=[
        'scripts/readmap.py',
        'scripts/newmap.py',
        'scripts/mapimages.py',
    ],
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: GPLv2 License",
        "Operating System :: OS Independent",
    ],
)
