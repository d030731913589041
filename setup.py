from setuptools import find_packages, setup

setup(
    name="terrafying-components",
    version="0.1.0",
    license="Apache License 2.0",

    author="uSwitch Cloud Team",
    author_email="cloud@uswitch.com",
    python_requires=">=3.10",
    description="Terraform JSON generators for certificate authorities, "
                "keypairs and auditd log shipping.",

    packages=find_packages(include=('terrafying', 'terrafying.*'),
                           exclude=('terrafying.test', 'terrafying.test.*')),
    package_data={'terrafying': ['templates/auditd/*.j2']},

    install_requires=[
        "Click>=7.0,<9.0",
        "toml>=0.10.0,<0.11.0",
        "boto3>=1.26,<2.0",
        "botocore>=1.29,<2.0",
        "Jinja2>=3.0,<4.0",
        "terrascript==0.9.0",
        "requests>=2.22.0,<3.0",
        "pydantic>=2.0,<3.0",
    ],

    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-mock>=3.10",
            "moto>=5.0",
        ],
    },

    test_suite="terrafying.test",

    classifiers=[
        'Development Status :: 2 - Pre-Alpha',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
    ],
    entry_points={
        'console_scripts': [
            'terrafying-components = terrafying.cli:components',
        ],
    },
)
