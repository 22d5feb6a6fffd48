import argparse
import json
import sys

from gdmarshal import logging as gdmarshal_logging
from gdmarshal import type_registry, utils
from gdmarshal.binder import ClassBinder, create_compiler
from gdmarshal.descriptor import ApiDescription
from gdmarshal.errors import GdMarshalError
from gdmarshal.type_classifier import TypeClassifier, describe

logger = gdmarshal_logging.get_logger(__name__)


def _add_common_arguments(parser):
    parser.add_argument(
        '--config',
        '-c',
        type=str,
        dest='config_file',
        help='The configuration file to use'
    )

    parser.add_argument(
        '--log-level',
        type=str,
        default=None,
        help='Console log level (TRACE, DEBUG, INFO, WARNING, ERROR)'
    )


def parse_plan(parser):
    parser.add_argument(
        'api_file',
        type=str,
        help='The engine API description JSON file'
    )

    parser.add_argument(
        '--class',
        dest='class_names',
        action='append',
        default=[],
        help='Only compile plans for this class; may be repeated'
    )

    parser.add_argument(
        '--utility',
        action='store_true',
        help='Also compile plans for the utility functions'
    )

    parser.add_argument(
        '--output',
        '-o',
        type=str,
        help='Write the plans to this JSON file instead of stdout'
    )

    _add_common_arguments(parser)


def parse_classify(parser):
    parser.add_argument(
        'type_names',
        nargs='+',
        help='Type names to classify'
    )

    parser.add_argument(
        '--api-file',
        type=str,
        help='API description used to learn the known class names'
    )

    _add_common_arguments(parser)


def _setup(args):
    config = utils.try_load_config(args.config_file)
    gdmarshal_logging.configure_logging(config, console_level_override=args.log_level)
    return config


def plan(parser, args):
    config = _setup(args)
    api = ApiDescription.load(args.api_file)
    known_classes = type_registry.known_classes_from_api(api.data, config)
    binder = ClassBinder(create_compiler(config, known_classes))

    class_names = args.class_names or api.class_names()
    bindings = []
    for class_name in class_names:
        description = api.get_class(class_name)
        if description is None:
            parser.error(f'Unknown class: {class_name}')
        bindings.append(binder.bind(class_name, description.methods))
    if args.utility:
        bindings.append(binder.bind_utilities(api.utility_functions()))

    output = {
        "bindings": [binding.to_dict() for binding in bindings],
        "virtual_methods": binder.registrar.to_dict(),
    }
    if args.output:
        utils.write_json(args.output, output)
        logger.info("Wrote %d binding(s) to %s", len(bindings), args.output)
    else:
        json.dump(output, sys.stdout, indent=2)
        sys.stdout.write("\n")


def classify(parser, args):
    config = _setup(args)
    api_data = utils.read_json(args.api_file) if args.api_file else {}
    classifier = TypeClassifier(
        type_registry.get_builtin_sizes(config),
        type_registry.known_classes_from_api(api_data, config),
    )
    for type_name in args.type_names:
        print(f'{type_name}: {json.dumps(describe(classifier.classify(type_name)))}')


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='gdmarshal: marshaling-plan compiler for engine method bindings'
    )

    subparsers = parser.add_subparsers(
        dest='subcommand',
        description='valid subcommands',
        help='Use one of these subcommands followed by -h for additional help',
        required=True
    )

    plan_parser = subparsers.add_parser(
        'plan',
        help='Compile marshaling plans for the methods of an API description'
    )

    classify_parser = subparsers.add_parser(
        'classify',
        help='Show how type names are classified'
    )

    parse_plan(plan_parser)
    parse_classify(classify_parser)

    args = parser.parse_args(argv)

    try:
        match args.subcommand:
            case 'plan':
                plan(parser, args)
            case 'classify':
                classify(parser, args)
            case _:
                parser.print_help()
    except GdMarshalError as e:
        logger.error("%s", e)
        sys.exit(1)


if __name__ == '__main__':
    main()
